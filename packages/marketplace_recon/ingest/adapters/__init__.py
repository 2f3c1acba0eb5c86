"""Marketplace report adapters (Amazon CSV, Flipkart workbook)."""
