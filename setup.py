
import setuptools


setuptools.setup(
    name="pacseq",
    version="0.0.1",
    author="Ming Wang",
    author_email="wangm08@hotmail.com",
    description="Reannotation of small RNA sequences, in the PAC tables",
    license="MIT",
    keywords='smRNAseq reannotation tRNA miRNA bowtie',
    packages=setuptools.find_packages(exclude=['test', 'test.*']),
    install_requires=[
        'pandas',
        'numpy',
        'pyfastx',
        'xopen',
        'toml',
        'PyYAML',
        'python-Levenshtein',
        'python-dateutil',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': ['pacseq=pacseq.pacseq:main'],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires='>=3.6',
    include_package_data=True,
    zip_safe=False,
)
