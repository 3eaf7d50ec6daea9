"""
Setup script for the vectorstore-filters package.
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="vectorstore-filters",
    version="0.1.0",
    author="Vectorstore Filters Team",
    description="Portable metadata filter expressions converted to native vector store queries",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["vectorstore", "vectorstore.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=[
        "qdrant-client>=1.9.0",
        "pydantic>=2.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "aiosqlite>=0.19.0",
            "black>=22.0.0",
            "mypy>=1.0.0",
        ],
    }
)
