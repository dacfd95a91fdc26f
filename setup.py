"""
Setup script for tbclust package.
"""

from setuptools import setup, find_packages

setup(
    name="tbclust",
    version="0.1.0",
    packages=find_packages(include=["tbclust", "tbclust.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scipy>=1.7.0",
        "scikit-learn>=1.0.0",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'tbclust=tbclust.__main__:main',
        ],
    },
    description="PCA and k-means clustering of yearly tuberculosis incidence tables",
    keywords="pca, kmeans, clustering, tuberculosis, exploratory analysis",
    python_requires=">=3.8",
)
