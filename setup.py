"""
Setup script for pcalab package.
"""

from setuptools import setup, find_packages

setup(
    name="pcalab",
    version="0.1.0",
    packages=find_packages(include=["pcalab", "pcalab.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",
        "scikit-learn>=1.0.0",

        # Web server
        "fastapi>=0.70.0",
        "uvicorn>=0.15.0",
        "pydantic>=1.8.0",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "tests": ["pytest>=6.0.0", "httpx>=0.23.0"],
    },
    entry_points={
        'console_scripts': [
            'pcalab=pcalab.__main__:main',
        ],
    },
    description="Principal component analysis worked examples: twin heights, iris and MNIST",
    keywords="pca, svd, knn, dimension reduction, mnist, iris",
    python_requires=">=3.8",
)
