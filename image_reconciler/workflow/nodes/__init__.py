"""Workflow nodes"""
