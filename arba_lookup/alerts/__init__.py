"""Delivery of lookup results to requesters."""
