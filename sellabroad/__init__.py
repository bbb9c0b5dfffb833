"""
SellAbroad 12-month forecast.

Unit economics (AOV, COGS, weight, marketing budget) plus a seasonal
merchandising calendar, projected into a monthly sales and P&L forecast.
"""

__version__ = "1.0.0"
