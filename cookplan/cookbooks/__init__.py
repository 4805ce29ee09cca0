"""
Cookbooks shipped with cookplan.

Each cookbook is a subpackage with attributes (defaults per platform),
recipes (functions declaring resources) and Jinja2 templates.
"""
