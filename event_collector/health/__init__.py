"""
Health Check Module
"""
