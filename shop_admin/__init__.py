# shop_admin/__init__.py
