"""Maine EZPass toll monitor: track discount-eligible tolls toward the monthly volume-discount tiers."""

__version__ = "0.1.0"
