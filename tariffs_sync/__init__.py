"""
WB Tariffs Sync

Job programado que descarga las tarifas de cajas de Wildberries,
las persiste en PostgreSQL y las publica en una o mas hojas de Google Sheets.
"""

__version__ = "1.0.0"
