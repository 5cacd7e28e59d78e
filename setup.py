# setup.py
from setuptools import setup, find_packages

setup(
    name="squaresum",
    version="0.1.0",
    description="Parallel search for runs of consecutive squares that sum to a perfect square",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "tqdm",
        "setproctitle",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "squaresum = squaresum.cli:run",
        ],
    },
)
