from setuptools import setup, find_packages
import os

# Read version
with open(os.path.join('schemasync', 'VERSION'), 'r') as f:
    version = f.read().strip()

setup(
    name='schemasync',
    version=version,
    description='Declarative schema migration for SQLite',
    packages=find_packages(include=['schemasync', 'schemasync.*']),
    include_package_data=True,
    python_requires='>=3.8',
    install_requires=[
        'sqlparse>=0.4.4',
        'sqlalchemy>=2.0.0',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    entry_points={
        'console_scripts': [
            'schemasync=schemasync.main:main',
        ],
    },
    package_data={
        '': ['VERSION'],
    },
)
