"""
setup.py - Package Installation Configuration
==============================================
"""

from setuptools import setup
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
if readme_file.exists():
    long_description = readme_file.read_text()
else:
    long_description = "Tile Layout and Material Estimation Engine"

# Read requirements
requirements_file = Path(__file__).parent / "requirements.txt"
if requirements_file.exists():
    with open(requirements_file) as f:
        requirements = [line.strip() for line in f
                        if line.strip() and not line.startswith('#')]
else:
    requirements = [
        'numpy>=1.21.0',
        'shapely>=2.0.0',
        'jinja2>=3.0.0',
        'pyyaml>=6.0',
    ]

setup(
    name='tile-layout-planner',
    version='1.0.0',
    author='Tile Layout Team',
    description='Tile layout, cut classification and material estimation for floor plans',
    long_description=long_description,
    long_description_content_type='text/markdown',
    py_modules=[
        'area_resolver',
        'config_tiling',
        'main',
        'pattern_generator',
        'pattern_validator',
        'plan_metrics',
        'plan_report',
        'polygon_algebra',
        'skirting_calculator',
        'tile_clipper',
        'tile_geometry',
        'tile_models',
        'utils',
        'waste_optimizer',
    ],
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Intended Audience :: Manufacturing',
        'Topic :: Scientific/Engineering',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
    install_requires=requirements,
    extras_require={
        'dev': [
            'pytest>=6.2.0',
            'black>=21.6b0',
            'flake8>=3.9.0',
            'mypy>=0.910',
            'coverage>=5.5',
        ],
    },
    entry_points={
        'console_scripts': [
            'tile-plan=main:main',
        ],
    },
    zip_safe=False,
)
