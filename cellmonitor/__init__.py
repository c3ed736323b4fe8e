"""
Desktop monitor for storage-cell status held in a SQL Server table.

The pure layers (models, stats, grid, fetcher, storage) carry no Tk imports so
they can be reused and tested without a display.
"""
