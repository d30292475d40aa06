"""Storefront backend: product catalogue API with a read-through cache."""
