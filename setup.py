#!/usr/bin/env python3
from setuptools import setup, find_packages

setup(
    name="adcmesh",
    version="0.1.0",
    description="Unstructured 2D coastal mesh library for ADCIRC, 2dm and DFlow-FM meshes",
    author="adcmesh developers",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20.0",
        "scipy>=1.7.0",
        "matplotlib>=3.4.0",
        "netCDF4>=1.5.8",
        "pyproj>=3.2.0",
        "pyshp>=2.1.0",
    ],
    extras_require={
        "meshio": ["meshio>=5.0.0"],
        "test": ["pytest>=6.0", "meshio>=5.0.0"],
    },
    entry_points={
        "console_scripts": [
            "adcmesh=adcmesh.cli.app:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering",
    ],
)
