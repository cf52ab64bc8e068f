"""
Setup script for reciprocal-headings.

Reciprocal Headings is the adaptive training core for aviation
reciprocal-heading recall. It provides:

1. Compass reference data and reciprocal arithmetic
2. Response validation with green/amber/red feedback
3. Snowball and Deck schedulers, trials and mastery challenges

The 'headings' command exposes reference lookups and simulated runs.
"""

from setuptools import find_packages, setup

setup(
    name="reciprocal-headings",
    version="1.0.0",
    description="Adaptive training scheduler for aviation reciprocal-heading recall",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Reciprocal Headings",
    packages=find_packages(include=["headings", "headings.*"]),
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "headings=headings.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="aviation headings reciprocal spaced-repetition training education",
)
