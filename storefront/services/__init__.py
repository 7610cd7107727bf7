"""Storefront services: persistence adapters, normalization and domain logic."""
