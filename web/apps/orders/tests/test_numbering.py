from apps.orders.numbering import ORDER_NUMBER_RE, generate_order_number


def test_order_number_format():
    number = generate_order_number(clock=lambda: 1718000000.5)
    assert number.startswith("LP-1718000000500-")
    assert ORDER_NUMBER_RE.match(number)


def test_order_numbers_are_distinct_in_a_tight_loop():
    numbers = [generate_order_number() for _ in range(10_000)]
    assert len(set(numbers)) == len(numbers)
