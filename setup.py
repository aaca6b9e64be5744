"""
typecase: Type-Set Simplification and Specializing Dispatch for Python

Compiles hot container loops once per concrete representation:
1. Type-set simplification (deduplicate, specificity order, shadow removal)
2. Exhaustiveness checking with catch-all repair
3. AST-level dispatch generation with per-branch body duplication
4. Accessor specialization for narrowed element access
"""

from setuptools import setup, find_packages

setup(
    name="typecase",
    version="1.0.0",
    description="Type-set simplification and specializing type dispatch for Python",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    author="typecase developers",
    python_requires=">=3.10",
    packages=find_packages(include=["typecase", "typecase.*"]),
    install_requires=[
        "numpy>=1.24.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
        ]
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Compilers",
        "Topic :: Software Development :: Code Generators",
    ],
)
