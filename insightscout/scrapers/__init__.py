# scrapers/__init__.py
