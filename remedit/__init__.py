"""remedit — edit files on cloud storage and reconcile them back safely"""
__version__ = "0.1.0"
