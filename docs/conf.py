# Configuration file for the Sphinx documentation builder.

from sitescales import __version__

project = 'SiteScales'
copyright = '2026, SiteScales contributors'
author = 'SiteScales contributors'
release = __version__

extensions = ['sphinx.ext.autodoc', 'myst_parser']

templates_path = ['_templates']
exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

source_suffix = {
	'.rst': 'restructuredtext',
	'.md': 'myst_parser',
}

html_theme = 'nature'
html_static_path = ['_static']

html_sidebars = {
	'**': ['localtoc.html', 'searchbox.html'],
}
