# File: zebu/setup.py
# Location: zebu/setup.py
"""
Setup script for zebu.

This file configures how the package is built, installed, and what
dependencies are required.
"""

import os
from setuptools import setup, find_packages

# Load version from version.py without importing the module
version = {}
with open(os.path.join("zebu", "version.py")) as f:
    exec(f.read(), version)

# Read the README for the long description
this_dir = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_dir, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="zebu",
    version=version["__version__"],
    description="Local association measures between categorical variables.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["zebu", "zebu.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
        "statsmodels",
        "jinja2",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["zebu=zebu.cli:main"]},
    include_package_data=True,
    package_data={"zebu": ["config.json", "templates/*.html"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU General Public License v2 (GPLv2)",
        "Operating System :: OS Independent",
    ],
)
