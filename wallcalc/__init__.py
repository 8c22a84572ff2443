"""Thermal, vapour-diffusion and economic analysis of multi-layer walls."""
