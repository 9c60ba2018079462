import time


SECONDS_PER_DAY = 60 * 60 * 24


def age_in_days(mtime: float, now: float | None = None) -> float:
	"""
	Return how many days ago `mtime` (epoch seconds) was, as a real number.
	`now` defaults to the current time.
	"""
	if now is None:
		now = time.time()
	return (now - mtime) / SECONDS_PER_DAY
