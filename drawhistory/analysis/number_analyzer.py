"""
Draw history number analysis module.

This module classifies numbers as hot, warm, cool or cold over a chosen
time period and builds the summary shown by the command line.
"""
import logging
import pandas as pd
from typing import List, Dict, Any, Tuple, Optional, Sequence
from datetime import date, timedelta

from ..lottery.records import DrawRecord, NumberRanges
from .statistics import find_duplicate_draws, number_frequency, pair_co_occurrence

logger = logging.getLogger(__name__)

TIME_PERIODS = ('all', '10years', 'year', '6months', '3months')

# Days covered by each time period
PERIOD_DAYS = {
    '10years': 3650,
    'year': 365,
    '6months': 182,
    '3months': 91,
}

class NumberAnalyzer:
    """Analyze a snapshot of draws for frequency patterns.

    Args:
        records: Draw records, usually ``Series.snapshot()``
        ranges: Number pools of the series
        today: Reference date for time period filters
    """

    def __init__(self, records: Sequence[DrawRecord], ranges: NumberRanges, today: Optional[date] = None):
        self.ranges = ranges
        self.today = today or date.today()
        self.draws_df = self._load_data(records)

    @staticmethod
    def _load_data(records: Sequence[DrawRecord]) -> pd.DataFrame:
        """Load draw records into a pandas DataFrame, oldest first."""
        data = []
        for record in records:
            data.append({
                'draw_date': record.draw_date,
                'standard_numbers': list(record.standard_numbers),
                'bonus': record.bonus_number,
                'extra_numbers': list(record.extra_numbers) if record.extra_numbers else None,
                'jackpot': record.verbose_info.jackpot_amount if record.verbose_info else None,
                'record': record,
            })

        df = pd.DataFrame(data, columns=['draw_date', 'standard_numbers', 'bonus',
                                         'extra_numbers', 'jackpot', 'record'])
        if len(df) > 0:
            df = df.sort_values('draw_date').reset_index(drop=True)
        logger.info(f"Loaded {len(df)} draws for analysis")
        return df

    def filter_by_time_period(self, time_period: str) -> pd.DataFrame:
        """Filter draws DataFrame by time period.

        Args:
            time_period: Time period ('all', '10years', 'year', '6months', '3months')

        Returns:
            Filtered DataFrame
        """
        if time_period == 'all' or len(self.draws_df) == 0:
            return self.draws_df
        if time_period not in PERIOD_DAYS:
            logger.warning(f"Unknown time period: {time_period}, using all data")
            return self.draws_df

        cutoff_date = self.today - timedelta(days=PERIOD_DAYS[time_period])
        filtered_df = self.draws_df[self.draws_df['draw_date'] >= cutoff_date]
        logger.info(f"Filtered to {len(filtered_df)} draws for time period: {time_period}")
        return filtered_df

    def records_for(self, time_period: str = 'all') -> List[DrawRecord]:
        return list(self.filter_by_time_period(time_period)['record'])

    def analyze_number_frequency(self, time_period: str = 'all',
                                 include_bonus: bool = True) -> Tuple[Dict[int, Dict], Dict[int, Dict]]:
        """Analyze frequency of numbers and identify hot and cold numbers.

        Args:
            time_period: Time period for analysis
            include_bonus: Count bonus numbers drawn from the standard pool

        Returns:
            Tuple of (standard_numbers_frequency, extra_numbers_frequency);
            the extra dictionary is empty when no extras were drawn
        """
        records = self.records_for(time_period)
        if not records:
            logger.error("No data available for analysis")
            return {}, {}

        frequency = number_frequency(records, self.ranges, include_bonus)

        standard_freq = self._classify(frequency.standard, self.ranges.standard_low, int(frequency.standard.sum()))

        extra_freq = {}
        if frequency.extra is not None:
            extra_freq = self._classify(frequency.extra, self.ranges.extra_low, int(frequency.extra.sum()))

        return standard_freq, extra_freq

    @staticmethod
    def _classify(counts, low: int, total: int) -> Dict[int, Dict]:
        """Attach percentages and a hot/warm/cool/cold status to counts.

        Args:
            counts: Counts indexed by ``number - low``
            low: Lowest number of the pool
            total: Number of balls drawn, for the percentages

        Returns:
            Dictionary with number frequencies and classifications
        """
        frequency = {}
        for offset, count in enumerate(counts):
            frequency[low + offset] = {
                'count': int(count),
                'percentage': (int(count) / total) * 100 if total else 0.0,
            }

        # Stable sort, so equal counts keep ascending number order
        sorted_numbers = sorted(frequency, key=lambda n: frequency[n]['count'], reverse=True)

        # Top 20% are hot, next 30% are warm, next 30% are cool, bottom 20% are cold
        pool_size = len(sorted_numbers)
        hot_count = int(pool_size * 0.2)
        warm_count = int(pool_size * 0.3)
        cool_count = int(pool_size * 0.3)

        for i, num in enumerate(sorted_numbers):
            if i < hot_count:
                frequency[num]['status'] = 'hot'
            elif i < hot_count + warm_count:
                frequency[num]['status'] = 'warm'
            elif i < hot_count + warm_count + cool_count:
                frequency[num]['status'] = 'cool'
            else:
                frequency[num]['status'] = 'cold'

        return frequency

    @staticmethod
    def numbers_with_status(frequency: Dict[int, Dict], status: str) -> List[int]:
        """Numbers of one status, most drawn first for hot numbers and least drawn first otherwise."""
        numbers = [n for n, data in frequency.items() if data['status'] == status]
        return sorted(numbers, key=lambda n: frequency[n]['count'], reverse=(status == 'hot'))

    def get_summary(self, time_period: str = 'all', include_bonus: bool = True) -> Dict[str, Any]:
        """Build the overall summary for a time period.

        Returns:
            Dictionary with draw counts, the date range, hot and cold
            numbers, the top pairs and any duplicate draws
        """
        filtered_df = self.filter_by_time_period(time_period)
        records = list(filtered_df['record'])
        standard_freq, extra_freq = self.analyze_number_frequency(time_period, include_bonus)

        summary = {
            'time_period': time_period,
            'total_draws_analyzed': len(records),
            'date_range': {
                'first_draw': filtered_df['draw_date'].min().strftime('%Y-%m-%d') if records else None,
                'last_draw': filtered_df['draw_date'].max().strftime('%Y-%m-%d') if records else None,
            },
            'hottest_numbers': self.numbers_with_status(standard_freq, 'hot'),
            'coldest_numbers': self.numbers_with_status(standard_freq, 'cold'),
            'hottest_extra_numbers': self.numbers_with_status(extra_freq, 'hot'),
            'coldest_extra_numbers': self.numbers_with_status(extra_freq, 'cold'),
            'top_pairs': pair_co_occurrence(records, self.ranges).top_pairs if records else [],
            'duplicate_draws': find_duplicate_draws(records),
        }

        jackpots = filtered_df['jackpot'].dropna()
        if len(jackpots) > 0:
            summary['largest_jackpot'] = max(jackpots)

        return summary
