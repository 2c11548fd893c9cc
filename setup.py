import os
import re
from setuptools import setup, find_packages

DISTNAME = "evakit"
PACKAGES = find_packages(include=["evakit", "evakit.*"])
EXTENSIONS = []
DESCRIPTION = "Extreme Value Analysis Toolkit"
AUTHOR = "evakit developers"
MAINTAINER_EMAIL = ""
LICENSE = "Revised BSD"
URL = ""
CLASSIFIERS = [
    "Development Status :: 3 - Alpha",
    "Programming Language :: Python :: 3",
    "Topic :: Scientific/Engineering",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
]
DEPENDENCIES = [
    "numpy>=2.0.0",
    "pandas>=2.2.2",
    "scipy>=1.14.0",
    "xarray>=2024.6.0",
    "statsmodels>=0.14.2",
    "arviz>=0.20.0,<1.0",
]
EXTRAS = {
    "test": ["pytest"],
}

LONG_DESCRIPTION = """
evakit is a Python package for extreme value analysis of block maxima and
threshold exceedances. The software package includes functionality for:

* GEV and GPD models with covariates on every parameter
* Maximum likelihood estimation with observed-information covariance
* Probability-weighted moment estimation with bootstrap intervals
* Bayesian estimation by random-walk Metropolis sampling
* Return levels with confidence intervals

Installation
------------------------
evakit requires Python 3.10 or later along with numpy, scipy, pandas,
xarray, statsmodels and arviz. Install it with ``pip install .`` from
the source tree, and ``pip install .[test]`` to run the tests.

Copyright and license
------------------------
The software is distributed under the Revised BSD License.
"""


# get version from __init__.py
file_dir = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(file_dir, "evakit", "__init__.py")) as f:
    version_file = f.read()
    version_match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", version_file, re.M)
    if version_match:
        VERSION = version_match.group(1)
    else:
        raise RuntimeError("Unable to find version string.")

setup(
    name=DISTNAME,
    version=VERSION,
    packages=PACKAGES,
    ext_modules=EXTENSIONS,
    description=DESCRIPTION,
    long_description_content_type="text/markdown",
    long_description=LONG_DESCRIPTION,
    author=AUTHOR,
    maintainer_email=MAINTAINER_EMAIL,
    license=LICENSE,
    url=URL,
    classifiers=CLASSIFIERS,
    zip_safe=False,
    install_requires=DEPENDENCIES,
    extras_require=EXTRAS,
    scripts=[],
    include_package_data=True,
)
