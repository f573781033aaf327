import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name="volconvert",
    version="0.1.0",
    author="Hannah Pullen",
    author_email="hp346@cam.ac.uk",
    description="Convert Analyze, NIfTI-1, NRRD and raw volumes to "
                "multi-frame images in DICOM patient coordinates",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="",
    packages=setuptools.find_packages(include=["volconvert", "volconvert.*"]),
    scripts=["bin/convert_volume.py"],
    python_requires=">=3.10",
    install_requires=[
                      'nibabel',
                      'numpy',
                      'pydicom>=3.0',
                     ],
    extras_require={
        'tests': [
                  'pynrrd',
                  'pytest',
                 ],
    },
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Operating System :: POSIX :: Linux',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
    ],
)
