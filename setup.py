#!/usr/bin/env python3

from setuptools import setup, find_packages

# Read the README file for the long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Read requirements from requirements.txt
def read_requirements(filename):
    with open(filename, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip() and not line.startswith('#')]

requirements = read_requirements('requirements.txt')

# Extract version from __init__.py or set manually
__version__ = "1.0.0"

setup(
    name="meshwarp",
    version=__version__,
    description="Thin-plate spline 3D mesh warping engine with undoable document semantics",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["meshwarp", "meshwarp.*"]),
    py_modules=["warp"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering",
        "Topic :: Multimedia :: Graphics :: 3D Modeling",
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=3.0.0",
            "black>=22.0.0",
            "flake8>=5.0.0",
            "mypy>=0.991",
        ],
        "gpu": [
            "torch>=1.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mesh_warp=warp:main",
        ],
    },
    include_package_data=True,
    data_files=[("config", ["config/warp.yaml"])],
    keywords=[
        "thin plate spline",
        "mesh warping",
        "landmarks",
        "geometry processing",
        "undo redo",
    ],
    zip_safe=False,
)
