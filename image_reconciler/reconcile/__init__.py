"""Reconciliation of catalog entries and duplicate detection"""
