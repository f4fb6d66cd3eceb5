# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="staticbuild",
    version="1.0.0",
    description="Static site build pipeline: minifies JS, CSS and HTML into a clean output tree",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["staticbuild*"]),
    python_requires=">=3.9",
    install_requires=[
        "beautifulsoup4",  # Locates inline <script>/<style> elements
        "rjsmin",          # Default JavaScript minifier
        "rcssmin",         # CSS minifier (files, inline styles, style attributes)
        "minify-html>=0.16",  # Whole-document whitespace and comment removal
        "pygments",        # JavaScript lexer for the pre-minify syntax check
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'staticbuild=staticbuild.interface.cli.app:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
