from __future__ import annotations

import os

from setuptools import find_packages, setup


def _read_long_description() -> str:
    path = os.path.join(os.path.abspath(os.path.dirname(__file__)), "DESIGN.md")
    if not os.path.exists(path):
        return ""
    with open(path, encoding="utf-8") as f:
        return f.read()


setup(
    name="pbceri",
    version="0.1.0",
    description="Periodic two-center Coulomb integrals with the minimax-exponential (MME) method",
    long_description=_read_long_description(),
    long_description_content_type="text/markdown",
    python_requires=">=3.10",
    packages=find_packages(include=["pbceri", "pbceri.*"]),
    install_requires=[
        "numpy>=1.23",
        "scipy>=1.9",
    ],
    extras_require={
        "numba": ["numba>=0.57"],
        "mpi": ["mpi4py>=3.1"],
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "pbceri-doctor=pbceri.cli.doctor:main",
        ],
    },
)
