# Sphinx configuration for the GitHub Issue Todos docs

import os
import sys

sys.path.insert(0, os.path.abspath('../src'))

from github_issue_todos import __version__  # noqa: E402

project = 'GitHub Issue Todos'
author = 'GitHub Issue Todos contributors'
copyright = '2025, ' + author
release = __version__

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx.ext.intersphinx',
    'sphinx_autodoc_typehints',
]

exclude_patterns = ['_build']

html_theme = 'sphinx_rtd_theme'

# Pydantic models expose many inherited helpers; document declared members only.
autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'show-inheritance': True,
}
autodoc_typehints = 'description'

# Docstrings use the Google "Raises:" / "Returns:" sections.
napoleon_google_docstring = True
napoleon_numpy_docstring = False

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'requests': ('https://requests.readthedocs.io/en/latest/', None),
    'pydantic': ('https://docs.pydantic.dev/latest/', None),
}
