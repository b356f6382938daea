type Liquidity = int
type Pip = int  # Pool fees are expressed in pips equaling one hundredth of one basis point
type PositionId = int
type SqrtPriceX96 = int
type Tick = int
type Timestamp = int
type X128 = int  # Q128.128 fixed point value
