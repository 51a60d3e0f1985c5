"""Bundled static reference data"""
