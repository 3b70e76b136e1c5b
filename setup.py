"""
Setup script for the Change Projection engine.
"""

from setuptools import setup, find_packages
import os


def read_readme():
    """Read README file for long description."""
    if os.path.exists('README.md'):
        with open('README.md', 'r', encoding='utf-8') as f:
            return f.read()
    return "Visibility estimation and change mask projection for 3D reconstructions"


# Core requirements (always installed)
install_requires = [
    'numpy>=1.19.0',
    'scipy>=1.6.0',
    'opencv-python>=4.5.0',
    'open3d>=0.15.0',
]

extras_require = {
    'dev': [
        'pytest>=6.0.0',
        'pytest-cov>=2.12.0',
    ],
}

setup(
    name="change-projection",
    version="1.0.0",
    description="Vertex visibility and occlusion-aware projection of 2D change masks onto 3D reconstructions",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(include=['ChangeProjection', 'ChangeProjection.*']),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Image Processing",
    ],
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        'console_scripts': [
            'change-projection=ChangeProjection.cli:main',
        ],
    },
    keywords=[
        "computer vision",
        "3d reconstruction",
        "change detection",
        "visibility",
        "ray casting",
        "voxel grid",
    ],
)
