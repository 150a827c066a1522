"""Auth components"""
