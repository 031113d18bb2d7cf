"""Pure domain helpers for the lease kernel: values and clock."""
