"""LangGraph reconciliation workflow"""
