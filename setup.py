from pathlib import Path

from setuptools import find_packages, setup

setup(
    name="EvoBrain",
    version="1.0",
    description="Neuroevolution of fixed-topology feed-forward networks with a genetic algorithm.",
    packages=find_packages(include=["evobrain", "evobrain.*"]),
    python_requires=">=3.9",
    install_requires=Path("requirements.txt").read_text(encoding="utf-8").splitlines(),
    extras_require={
        "test": ["pytest>=7.0"],
        "tracking": ["mlflow>=2.0"],
    },
)
