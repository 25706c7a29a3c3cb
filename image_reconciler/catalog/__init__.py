"""Catalog file access and image reference resolution"""
