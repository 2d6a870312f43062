"""
Coherent noise for procedural motion.

Classic 2D gradient (Perlin) noise over a fixed permutation table. There is
no RNG anywhere: identical coordinates always give identical values, which
keeps live evaluation and baked samples in agreement.
"""

import math

import numpy as np


# Ken Perlin's reference permutation
_PERM = np.array([
    151,160,137,91,90,15,131,13,201,95,96,53,194,233,7,225,140,36,103,30,69,142,
    8,99,37,240,21,10,23,190,6,148,247,120,234,75,0,26,197,62,94,252,219,203,117,
    35,11,32,57,177,33,88,237,149,56,87,174,20,125,136,171,168,68,175,74,165,71,
    134,139,48,27,166,77,146,158,231,83,111,229,122,60,211,133,230,220,105,92,41,
    55,46,245,40,244,102,143,54,65,25,63,161,1,216,80,73,209,76,132,187,208,89,
    18,169,200,196,135,130,116,188,159,86,164,100,109,198,173,186,3,64,52,217,226,
    250,124,123,5,202,38,147,118,126,255,82,85,212,207,206,59,227,47,16,58,17,182,
    189,28,42,223,183,170,213,119,248,152,2,44,154,163,70,221,153,101,155,167,43,
    172,9,129,22,39,253,19,98,108,110,79,113,224,232,178,185,112,104,218,246,97,
    228,251,34,242,193,238,210,144,12,191,179,162,241,81,51,145,235,249,14,239,
    107,49,192,214,31,181,199,106,157,184,84,204,176,115,121,50,45,127,4,150,254,
    138,236,205,93,222,114,67,29,24,72,243,141,128,195,78,66,215,61,156,180
], dtype=np.int32)

_PERM = np.concatenate([_PERM, _PERM])  # Double for wraparound

# Plain ints for the scalar hot path
_P = [int(v) for v in _PERM]


def _fade(t: float) -> float:
    """Perlin fade function: 6t^5 - 15t^4 + 10t^3"""
    return t * t * t * (t * (t * 6 - 15) + 10)


def _lerp(a: float, b: float, t: float) -> float:
    return a + t * (b - a)


def _grad2d(hash_val: int, x: float, y: float) -> float:
    h = hash_val & 3
    if h == 0:
        return x + y
    elif h == 1:
        return -x + y
    elif h == 2:
        return x - y
    else:
        return -x - y


def perlin_noise_2d(x: float, y: float) -> float:
    """2D Perlin noise, returns value in [-1, 1]"""
    fx = math.floor(x)
    fy = math.floor(y)
    xi = int(fx) & 255
    yi = int(fy) & 255
    xf = x - fx
    yf = y - fy

    u = _fade(xf)
    v = _fade(yf)

    aa = _P[_P[xi] + yi]
    ab = _P[_P[xi] + yi + 1]
    ba = _P[_P[xi + 1] + yi]
    bb = _P[_P[xi + 1] + yi + 1]

    x1 = _lerp(_grad2d(aa, xf, yf), _grad2d(ba, xf - 1, yf), u)
    x2 = _lerp(_grad2d(ab, xf, yf - 1), _grad2d(bb, xf - 1, yf - 1), u)

    return _lerp(x1, x2, v)


def noise01(x: float, y: float) -> float:
    """Noise field sampled at (x, y), mapped to [0, 1]"""
    value = (perlin_noise_2d(x, y) + 1.0) * 0.5
    return min(1.0, max(0.0, value))


def signed_noise(x: float, y: float) -> float:
    """Noise field mapped from [0, 1] back to [-1, 1]"""
    return noise01(x, y) * 2.0 - 1.0

