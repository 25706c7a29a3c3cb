"""Excel report export"""
