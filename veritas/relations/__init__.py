"""Price, liquidity and depth maths for each kind of liquidity relation."""