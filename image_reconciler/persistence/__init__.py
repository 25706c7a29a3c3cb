"""Backup-then-write persistence"""
