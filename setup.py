"""
Setup script for Gallery
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = readme_path.read_text() if readme_path.exists() else ""

setup(
    name="gallery-takestamps",
    version="0.1.0",
    description="Photo gallery album tree with incrementally maintained takestamp ranges",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["gallery", "gallery.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=[
        "SQLAlchemy>=2.0",
        "alembic>=1.11",
        "click>=8.1.0",
        "PyYAML>=6.0",
        "colorlog>=6.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "gallery=gallery.cli:main",
        ],
    },
    include_package_data=True,
    package_data={
        "gallery": [
            "config.yaml",
            "db/migrations/*.py",
            "db/migrations/versions/*.py",
        ],
    },
)
