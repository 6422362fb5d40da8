"""
Setup script for examdeck.

examdeck is a local exam-practice engine. It serves three roles:

1. Catalog - Tracks imported, versioned question banks
2. Exam stores - Per-exam questions, attempts and answer history
3. Sessions - Resumable attempts with prev/current/next navigation

The 'examdeck' command is the entry point for ingestion and progress views.
"""

from setuptools import find_packages, setup

setup(
    name="examdeck",
    version="1.0.0",
    description="Local exam practice with versioned question banks and resumable attempts",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_packages(include=["examdeck", "examdeck.*"]),
    py_modules=["config"],
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
            "examdeck=examdeck.cli.main:main",
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
        "Topic :: Education :: Testing",
    ],
    keywords="exam practice quiz sqlite education",
)
