"""Pydantic models for catalog entries, images, decisions and reports"""
