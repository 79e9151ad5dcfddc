"""qnets — pip-installable package."""

from setuptools import setup, find_packages

setup(
    name="qnets",
    version="1.0.0",
    description="Noisy linear layers and dueling Q-networks built on NumPy",
    author="Luca Gandolfi",
    packages=find_packages(include=["qnets", "qnets.*"]),
    package_data={"qnets": ["configs/*.yaml"]},
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24.0",
        "pyyaml>=6.0",
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": ["pytest>=7.4.0"],
    },
)
