"""
Terminal-based visualizations for draw history analysis.

This module provides colorful terminal output for stored draws and analysis results.
"""
import logging
from typing import List, Dict, Any, Sequence
from colorama import init, Fore, Back, Style
from tabulate import tabulate

from ..lottery.records import DrawRecord, NumberRanges

# Initialize colorama for cross-platform colored terminal text
init()

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    'hot': Fore.RED,
    'warm': Fore.YELLOW,
    'cool': Fore.BLUE,
    'cold': Fore.CYAN
}

class AnalysisVisualizer:
    """Terminal-based visualizer for lottery analysis results."""

    @staticmethod
    def print_header(title: str):
        """Print a styled header.

        Args:
            title: Header title text
        """
        width = 80
        print("\n" + "=" * width)
        print(f"{Fore.CYAN}{Style.BRIGHT}{title.center(width)}{Style.RESET_ALL}")
        print("=" * width)

    @staticmethod
    def print_subheader(title: str):
        """Print a styled subheader.

        Args:
            title: Subheader title text
        """
        width = 80
        print("\n" + "-" * width)
        print(f"{Fore.YELLOW}{title}{Style.RESET_ALL}")
        print("-" * width)

    @staticmethod
    def print_draws(records: Sequence[DrawRecord], series_name: str):
        """Print stored draws, newest first."""
        AnalysisVisualizer.print_header(f"Latest {len(records)} {series_name} Draws")

        table = []
        for record in records:
            extra = ' '.join(f"{n:2d}" for n in record.extra_numbers) if record.extra_numbers else '-'
            jackpot = f"{record.verbose_info.jackpot_amount:,.0f}" if record.verbose_info else '-'
            table.append([
                record.draw_date.strftime('%Y-%m-%d'),
                ' '.join(f"{n:2d}" for n in record.standard_numbers),
                record.bonus_number,
                extra,
                jackpot,
            ])

        print(tabulate(table, headers=["Date", "Numbers", "Bonus", "Extra", "Jackpot"], tablefmt="simple"))

    @staticmethod
    def _frequency_rows(frequency: Dict[int, Dict]) -> List[List[Any]]:
        rows = []
        for number in sorted(frequency):
            data = frequency[number]
            status = data['status']
            color = STATUS_COLORS.get(status, '')
            rows.append([
                number,
                f"{color}{data['count']}{Style.RESET_ALL}",
                f"{color}{data['percentage']:.2f}%{Style.RESET_ALL}",
                f"{color}{status.upper()}{Style.RESET_ALL}"
            ])
        return rows

    @staticmethod
    def print_frequency_analysis(standard_numbers: Dict[int, Dict], extra_numbers: Dict[int, Dict],
                                 ranges: NumberRanges, series_name: str, time_period: str = 'all'):
        """Print frequency analysis results to terminal.

        Args:
            standard_numbers: Dictionary of standard number frequencies
            extra_numbers: Dictionary of extra number frequencies, may be empty
            ranges: Number pools of the series
            series_name: Display name of the series
            time_period: Time period used for analysis
        """
        AnalysisVisualizer.print_header(f"{series_name} Number Frequency Analysis ({time_period})")

        AnalysisVisualizer.print_subheader(f"Numbers ({ranges.standard_low}-{ranges.standard_high})")
        rows = AnalysisVisualizer._frequency_rows(standard_numbers)
        # Print 10 numbers per block
        for start in range(0, len(rows), 10):
            print(tabulate(rows[start:start + 10], headers=["Number", "Count", "Frequency", "Status"],
                           tablefmt="simple"))
            if start + 10 < len(rows):
                print()

        if extra_numbers:
            AnalysisVisualizer.print_subheader(f"Extra Numbers ({ranges.extra_low}-{ranges.extra_high})")
            print(tabulate(AnalysisVisualizer._frequency_rows(extra_numbers),
                           headers=["Number", "Count", "Frequency", "Status"], tablefmt="simple"))

    @staticmethod
    def print_top_pairs(top_pairs: List[tuple], series_name: str):
        """Print the pairs of numbers drawn together most often.

        Args:
            top_pairs: List of (count, a, b) tuples
            series_name: Display name of the series
        """
        AnalysisVisualizer.print_header(f"{series_name} Numbers Drawn Together")

        if not top_pairs:
            print("No pairs to show")
            return

        table = [
            [f"{Fore.WHITE}{Back.RED}{a:2d}{Style.RESET_ALL} {Fore.WHITE}{Back.RED}{b:2d}{Style.RESET_ALL}", count]
            for count, a, b in top_pairs
        ]
        print(tabulate(table, headers=["Pair", "Times Drawn"], tablefmt="simple"))

    @staticmethod
    def print_duplicates(groups: List[List[DrawRecord]], series_name: str):
        """Print groups of draws that share the same numbers."""
        AnalysisVisualizer.print_header(f"{series_name} Repeated Draws")

        if not groups:
            print(f"{Fore.GREEN}No two draws share the same numbers{Style.RESET_ALL}")
            return

        for group in groups:
            numbers = ' '.join(f"{n:2d}" for n in sorted(group[0].standard_numbers))
            dates = ', '.join(r.draw_date.strftime('%Y-%m-%d') for r in group)
            print(f"{Fore.RED}{numbers}{Style.RESET_ALL}: {dates}")

    @staticmethod
    def print_summary(summary: Dict[str, Any], series_name: str):
        """Print overall analysis summary to terminal.

        Args:
            summary: Dictionary with summary information
            series_name: Display name of the series
        """
        AnalysisVisualizer.print_header(f"{series_name} Analysis Summary")

        date_range = summary.get('date_range', {})
        total_draws = summary.get('total_draws_analyzed', 0)

        print(f"\n{Fore.CYAN}Data Overview:{Style.RESET_ALL}")
        print(f"• Total draws analyzed: {total_draws}")
        print(f"• Date range: {date_range.get('first_draw') or 'N/A'} to {date_range.get('last_draw') or 'N/A'}")
        if 'largest_jackpot' in summary:
            print(f"• Largest jackpot: {summary['largest_jackpot']:,.0f}")

        print(f"\n{Fore.CYAN}Hottest Numbers:{Style.RESET_ALL}")
        hottest = summary.get('hottest_numbers', [])
        print(f"• {', '.join(f'{Fore.RED}{num}{Style.RESET_ALL}' for num in hottest[:10])}")

        print(f"\n{Fore.CYAN}Coldest Numbers:{Style.RESET_ALL}")
        coldest = summary.get('coldest_numbers', [])
        print(f"• {', '.join(f'{Fore.BLUE}{num}{Style.RESET_ALL}' for num in coldest[:10])}")

        if summary.get('hottest_extra_numbers'):
            print(f"\n{Fore.CYAN}Hottest Extra Numbers:{Style.RESET_ALL}")
            print(f"• {', '.join(f'{Fore.RED}{num}{Style.RESET_ALL}' for num in summary['hottest_extra_numbers'][:10])}")

        pairs = summary.get('top_pairs', [])
        if pairs:
            print(f"\n{Fore.CYAN}Most Common Pairs:{Style.RESET_ALL}")
            print(f"• {', '.join(f'{a}-{b} ({count})' for count, a, b in pairs)}")

        duplicates = summary.get('duplicate_draws', [])
        print(f"\n{Fore.CYAN}Repeated Draws:{Style.RESET_ALL}")
        print(f"• {len(duplicates)} group(s)")
