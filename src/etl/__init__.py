"""
ETL (Extract, Transform, Load) package for the dump ingest application.

This package contains modules for downloading the data dump, extracting it,
transforming its CSV files into records, and loading them into SQLite.
"""
