# grabcoffee/api/__init__.py
