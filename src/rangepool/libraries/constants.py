Q96_RESOLUTION = 96
Q96 = 1 << Q96_RESOLUTION

Q128_RESOLUTION = 128
Q128 = 1 << Q128_RESOLUTION

# Pool fees are expressed in pips, one hundredth of one basis point
FEE_DENOMINATOR = 1_000_000
