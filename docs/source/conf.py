# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys
sys.path.insert(0, os.path.abspath(os.path.join('..', '..')))

# -- Project information -----------------------------------------------------

project = 'distnet'
release = '0.1.0'

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.autosummary',
    'sphinx.ext.viewcode',
]

autodoc_default_options = {
    'members': True,
    'show-inheritance': True,
}

# optional backends are not needed to build the API pages
autodoc_mock_imports = ['mpi4py']

templates_path = ['_templates']
exclude_patterns = []

# -- Options for HTML output -------------------------------------------------

html_theme = 'sphinx_rtd_theme'
html_static_path = ['_static']


def skip_member(app, what, name, obj, skip, options):
    if name in ("Rendezvous",):
        return True
    return skip


def setup(app):
    app.connect("autodoc-skip-member", skip_member)
