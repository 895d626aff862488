"""Bundled data files (SQL schemas)"""
