"""Cache core: checksums, the file cache layout, cached downloads, resolution."""
