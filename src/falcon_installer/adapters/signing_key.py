"""Public key that signs the Falcon sensor RPM packages."""

FALCON_INSTALLER_GPG_KEY = """\
-----BEGIN PGP PUBLIC KEY BLOCK-----

mQINBGSd0wUBEADMlHjRUp7XEQf49xjlbyV/M6wv9rHvMg3NONypwSVSWndo7x1u
hnDcUeVFNv3AfMMM4c2+fNVdk8e5EN3rvU1+gsPwlj5rh0WHYldKqIfnjrZqnj2Y
ukDftSlpETgaIZFN0udg2HWGgZSViENldz8CDN4Q0oGF3s6GkhRpZA7ik7+EpbUf
vsvSfLKGUzREf8NGChmqjm7seoPiBVbU3uzALjDlHh1DHpHzk3obm+NEAi/t7+jj
6UWUox31Ta+lI4gzkfpiSxhduAe4HyIBaQ4pa0qCbfEt8ZII0RjMcppW7URlr3au
0nyQBphn/L6c3jdO3FFPKen31EucOYuVz4KSyAFr67UQl9nLlULuH3O78lkGBnNK
O33kkU1eGEavx/GfXwWCJd1tM8lCB0lLpvgvYN3q+/EvD/QDE/8cj117Z2U1lKY4
eT/d8yDJTM5ZerRZLEBH8nh+2Q4hOgyPvawN2x2YbIKVQs55mxLQd07OOB5RDov/
HG3kyeeRxIW+ObDqZq0w2d0zLhU1tANgEiH886L7jRhLik/ZpkWAqnACDLszcaOh
sRi1ACUMKTp5w5f/kdIVV1JMCxzkF2fzTPmP9nTxXEyHi2VUkKKQyu5b7sLT4EsL
RDffD3Mck95H+ALFdpeRgEmkgJ3xLi5HwPGWKWbEdOLR+pR1MrGVvdoeCwARAQAB
tElDcm93ZFN0cmlrZSwgSW5jLiAoZmFsY29uLXNlbnNvciBpbnN0YWxsZXIga2V5
KSA8c3VwcG9ydEBjcm93ZHN0cmlrZS5jb20+iQJSBBMBCAA8FiEEv2Mf1htUcfzg
UgvKXiAM4XmLyBgFAmSd0wUCGwMFCQHhM4AECwkIBwQVCgkIBRYCAwEAAh4BAheA
AAoJEF4gDOF5i8gYgGsQAJMafCytpjPWtjyVj5q9DA1hq5KjmcHrguPawNb/mlSF
i8M5JRbk5uhe1KSapPZJ5MxbWVXjzp+P3ebGzSlEvxNU7GvDpUPVEuuhzqjhLk/R
ZveT7dRFqUuHv8c2+8AztTdlAH4Q2BrozuGte10D1rlfCwE1pXucXA5Exd4/ec6m
xnpVN2bwu+CsyNCdYlSM8BO7dzmta+3QsKMxayGUtZYuEsUV1EXjnNdzt9eJVir9
Cpt31OR2M/i3l/Q/sW1x9k/9NTfx2iksC2I+nkR4T+Sb15Yq/8dJ8HkHZvOXAzot
7NhCECLpmIa7N6VmYvrCi8Fm5ovTsH2QzkvVaXrbSQppHQrS+bvvlzLfR14673HK
JDOSQyXLyMVqMpmftuBsdV68RSVf+vzF5e/WqaEB8qXQH/I8B3YDu9RNQrXLMyM/
mPk15KPO9kVjxujFFIlK9Ox1X2uqDY6yMDzgfbxopsIMd1Z6+Js1nqNbRy+5hGG0
8DHbRDlKrPX6TCEt68xVsOCsMi1+PbvgydLq6EB+mg/6cpK25upxHmcBF6HHKIm8
R2tyGD5elCPIi3U1IYGhXQFHGlvslKG0rhyBc1ya/pE8XQzv+KOh0OHGUG2COa4D
S/L9HPKBgdjltbptqo0c/vBdJFpRA405KR4ELcGPATq/6OODYMpjpZsrO2VreHNm
uQINBGSd0wUBEAC5pwLtqIrVKD+t9r3apWnysom9076HHFlsidND2o4S47XzfrZP
bdDuFH8QqWs58ZPLXfuzCIhq8GvvPWUoqTXcTxgtsauLAtyHBnexFxliXYbVh16T
SZTjrO/h2iTXgdPtqGVTA5SjZPZ8wTcOBNzctS9Q/kmwotySXSpXQDimzMBXSg/X
mX6g+ijz9wqFGBPdvU0rraWiVmLpMuJzpBW8GZsoXoEMdhLh+bd7Kq70lHxrC8IW
aYu57+MsIVe4Gdk7Zbs0XMwOWkGnA29Cixp8SvsdGhRj7FLC1wF0d2WGfhhsCHgm
EJbg7i6ch5lh8sdUM/ZbOvLYrAJ/Mao8z+1rh6cYA5vIJzaX3IO/cazivylhlcnk
u2Fzobks9KVTZXTHQ1J1pqtusqDtVTTs7n7svYiSWV0rT7CM/oCJCNfHTUDk5mwu
/NJSwNF/I598i3j1rZYNzaZ02SvpXOTakk4rZ+hRdX+nvhHG+0df+O7deu35LFoN
MVKYcTRkUBAGnp6mtwDd+DrRDMNwlsOJyv5GXWadK+RMSRb5KRxIDRqXt9D06AdQ
9DKFxta8IZekdzN6RlrkGCrVXF/LHDgLKVCOKFBgj2HP+XsPm2t3c8H+KbdSGJHi
9lJqjvF7+BpQLzFFmT0VIpbrHKGw/BqMD997ZzzIyHKXhSRBU0vq/v1EUQARAQAB
iQI8BBgBCAAmFiEEv2Mf1htUcfzgUgvKXiAM4XmLyBgFAmSd0wUCGwwFCQHhM4AA
CgkQXiAM4XmLyBhPkg//V+wL2TGlzFCV5ZTbPPiGNVFpuiAJVr+qyu80bSmo8xx+
91R5/z74gIYHxBdBS6gqmDWOJbJi56DMmhK6qq2cSPJbVoO9KrA03oyaJ+EMK9gX
vnxM2/G1CjqC6yFB8ZJgit77LEsC/BkJ6aQf3JvA4spBrbA7nt6RHehXQaTd93o0
IYBfD66qzzHgfnHXtDyyI82Bwft+Q8Q+pXOOX198V+7fyd/1eU8o/qx4jMTFw9Yw
1yDDDZoVNCxWSqOKvQZF0DNu2m8nNqx0vyFYwuV7vtm/Zb3briOB6kqcq3y5Rbiq
EoSemMkYL7WWYqwQmOrFKbHk6t0QwwQ9H+632hriAp1iN2vcTwhrvSt3tZcOfEK5
QD+oDtBWM3xwVrPDVGQfTbNHhg8D/mZUuxgLeVhaM7z2Gz7Dhb5iu9eD0w1xfaZ4
HeJJM45ZkZwhBOi9HFA6eM4p9Gd2uh11wpPcAigaFifylq8+evl6xseXmk8mQHpa
yjXMIJXGMLUecZuquNwkcQzb698HxOqwoLWUnYfPK4Une8Werb+04JVvEJI4Herf
azCTeDb8lfUKaNuc2eMvtBE1T+Vi/CA4keDP83vKUcK0Mwvstfue47kqFbuOuF8L
jEtro8ozeQjCFdwTjXwBh8PYJIPWgx/bdsQTavw9hhvesSBZ59U82tjnMGZzZTA=
=du8f
-----END PGP PUBLIC KEY BLOCK-----
"""
