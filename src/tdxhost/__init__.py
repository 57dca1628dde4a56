"""Check whether a host is ready to run Intel TDX workloads."""
