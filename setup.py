from setuptools import setup, find_packages

setup(
    name="pycloud",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        'numpy',
        'scipy',
        'open3d',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
)
