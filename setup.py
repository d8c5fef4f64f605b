from setuptools import setup, find_packages


setup(
    name="pbo",
    version="0.1",
    packages=find_packages(include=["pbo", "pbo.*"]),
    description="Reader and writer for PBO container archives.",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    entry_points={
        "console_scripts": [
            "pbo=pbo.cli:main",
        ]
    },
)
