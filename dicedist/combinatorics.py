"""q-analogs of the factorial and the binomial coefficient.

Both reduce to their ordinary counterparts at q = 1. Results are exact Python
ints, since the products outgrow fixed-width integers for modest k and q.
"""


def q_factorial(k: int, q: int) -> int:
    """[k]_q! = (1)(1 + q)(1 + q + q^2)...(1 + q + ... + q^(k-1))."""
    if k < 0 or q < 0:
        raise ValueError("q_factorial(%s, %s): arguments must be non-negative" % (k, q))

    power = 1
    partial_sum = 1
    product = 1
    for _ in range(1, k):
        power *= q
        partial_sum += power
        product *= partial_sum
    return product


def q_binomial(n: int, k: int, q: int) -> int:
    """Gaussian binomial coefficient [n choose k]_q."""
    if n < 0 or k < 0 or q < 0:
        raise ValueError(
            "q_binomial(%s, %s, %s): arguments must be non-negative" % (n, k, q)
        )
    if k > n:
        raise ValueError("q_binomial(%s, %s, %s): k must not exceed n" % (n, k, q))

    numerator = q_factorial(n, q)
    denominator = q_factorial(k, q) * q_factorial(n - k, q)
    quotient, remainder = divmod(numerator, denominator)
    assert remainder == 0, "q-factorial ratio did not divide evenly"
    return quotient
