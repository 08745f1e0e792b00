"""CLI package for Bookloft"""
from .main import cli

__all__ = ['cli']
