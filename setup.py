# coding: utf-8
# Copyright 2024 The iconsync Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
from setuptools import setup

# Read the contents of the README file
with open('README.md') as f:
    long_description = f.read()

setup(
    name="iconsync",
    version="0.1.0",
    description='Republishes an icon package whenever its upstream'
                ' icon repository changes',
    long_description=long_description,
    long_description_content_type='text/markdown',
    package_dir={'': 'Lib'},
    packages=['iconsync',
              'iconsync.sync',
              'iconsync.scripts'],
    entry_points={
        'console_scripts': ['iconsync=iconsync.scripts.sync:main'],
    },
    zip_safe=False,
    classifiers=[
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Topic :: Software Development :: Build Tools',
        'License :: OSI Approved :: Apache Software License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3'
    ],
    python_requires=">=3.8",
    extras_require={"test": ['pytest']},
    install_requires=[
        'GitPython',
        'PyYAML',
        'rich',
    ]
    )
