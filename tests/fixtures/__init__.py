"""Shared builders for Confluence records and page models."""
