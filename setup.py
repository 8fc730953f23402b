# setup.py
from setuptools import setup, find_packages

setup(
    name='cipv',
    version='0.1.0',
    packages=find_packages(where='src'),
    package_dir={'': 'src'},
    install_requires=['numpy', 'shapely', 'pyyaml'],
    extras_require={
        'test': ['pytest'],
    },
    python_requires='>=3.8',
)
