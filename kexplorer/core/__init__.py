"""Core types shared across kexplorer layers."""
