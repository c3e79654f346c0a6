"""Event registration admission and Google Sheets sync service"""
