"""
Soundlytics - Main Entry Point

Example usage:
    python main.py path/to/track.mp3
    python main.py --lang th path/to/track.wav
    python main.py --text "dusty boom bap with jazzy piano loops"
    python main.py --record 10 --output result.json
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Optional

from soundlytics.core.models import AnalysisResult
from soundlytics.core.session import AnalysisSession, create_session
from soundlytics.utils.config import load_config
from soundlytics.utils.errors import AnalysisBusyError, SoundlyticsError
from soundlytics.utils.logging import setup_logging_from_config
from soundlytics.utils.translations import Language, get_strings, translate


def main():
    """Main entry point for audio analysis."""
    parser = argparse.ArgumentParser(
        description="Identify genre, mood and musical DNA of a clip or a description"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "audio_file",
        type=Path,
        nargs="?",
        help="Path to audio file to analyze"
    )
    source.add_argument(
        "--text",
        type=str,
        default=None,
        help="Describe a track instead of supplying audio"
    )
    source.add_argument(
        "--record",
        type=float,
        metavar="SECONDS",
        default=None,
        help="Record from the default microphone for SECONDS"
    )
    parser.add_argument(
        "--lang",
        choices=[lang.value for lang in Language],
        default=None,
        help="Language of descriptive output (default: ui.language from config)"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Path to save JSON output"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    # Load configuration
    config_path = str(args.config) if args.config else None
    config = load_config(config_path)

    # Setup logging
    setup_logging_from_config(config, verbose=args.verbose)

    # Validate input file
    if args.audio_file is not None and not args.audio_file.exists():
        print(f"Error: Audio file not found: {args.audio_file}")
        sys.exit(1)

    try:
        session = create_session(config)
    except SoundlyticsError as e:
        print(f"Error: {e}")
        sys.exit(1)

    with session:
        if args.lang:
            session.set_language(args.lang)

        if not _acquire_input(session, args):
            sys.exit(1)

        print(f"\nAnalyzing: {_describe_input(session, args)}")
        result = _analyze(session, args.verbose)
        if result is None:
            sys.exit(1)

        _print_results(result, session.state.language)

        # Save output if requested
        if args.output:
            output_file = args.output
            if output_file.is_dir():
                output_file = output_file / "soundlytics_analysis.json"
            with open(output_file, 'w', encoding='utf-8') as f:
                f.write(result.to_json(indent=2))
            print(f"Results saved to: {output_file}")


def _acquire_input(session: AnalysisSession, args: argparse.Namespace) -> bool:
    """
    Load the requested input into the session.

    Returns:
        True when the session holds analysable input
    """
    language = session.state.language

    if args.text is not None:
        session.set_text(args.text)
    elif args.record is not None:
        if not session.start_recording():
            print(f"Error: {translate(language, session.state.error_key or 'error_sensor')}")
            return False
        print(f"{translate(language, 'capturing')} ({args.record:.0f}s)...")
        try:
            time.sleep(max(args.record, 0.0))
        except KeyboardInterrupt:
            print("\nInterrupted by user.")
            session.cancel_recording()
            return False
        pending = session.stop_recording()
        if pending is not None:
            pending.result()
    else:
        pending = session.select_file(args.audio_file)
        if pending is not None:
            pending.result()

    state = session.state
    if state.error_key:
        print(f"Error: {translate(language, state.error_key)}")
        return False
    if not state.has_input:
        print(f"Error: {translate(language, 'error_input')}")
        return False
    return True


def _describe_input(session: AnalysisSession, args: argparse.Namespace) -> str:
    audio = session.state.audio
    if audio is None:
        return f'"{args.text.strip()}"'
    duration = f", {audio.duration:.1f}s" if audio.duration is not None else ""
    return f"{audio.file_name} ({audio.mime_type}, {audio.size / 1024:.0f} KB{duration})"


def _analyze(session: AnalysisSession, verbose: bool = False) -> Optional[AnalysisResult]:
    """
    Submit the current input and wait for the result.

    Returns:
        AnalysisResult or None if the analysis failed
    """
    language = session.state.language
    try:
        pending = session.submit()
    except AnalysisBusyError as e:
        print(f"Error: {e}")
        return None

    if pending is None:
        print(f"Error: {translate(language, 'error_input')}")
        return None

    try:
        result = pending.result()
    except KeyboardInterrupt:
        print("\n\nInterrupted by user.")
        return None

    if result is None:
        print(f"Error: {translate(language, session.state.error_key or 'error_engine')}")
        if not verbose:
            print("Run with --verbose for details.")
        return None
    return result


def _print_results(result: AnalysisResult, language: Language) -> None:
    """
    Print analysis results.

    Args:
        result: AnalysisResult
        language: Language for section headings
    """
    t = get_strings(language)
    td = result.technical_details

    # Print summary
    print("\n" + "=" * 60)
    print(f"{t['digital_id'].upper()}: {result.primary_genre}")
    print("=" * 60)
    print(f"{t['confidence_rating']}: {result.confidence_score}%")
    print("-" * 60)
    print(result.description)
    print("-" * 60)

    if result.sub_genres:
        print(f"\n{t['genre_mapping']}:")
        for sub_genre in result.sub_genres:
            print(f"  {sub_genre.name:<30} {sub_genre.match_percentage:5.0f}%")

    print(f"\n{t['signal_metadata']}:")
    print(f"  {t['tempo']}: {td.bpm_estimate}")
    print(f"  {t['harmonic_key']}: {td.key_estimate}")
    print(f"  {t['structure']}: {td.time_signature}")

    if result.moods:
        print(f"\n{t['sonic_atmosphere']}: {', '.join(result.moods)}")
    if result.instrumentation:
        print(f"{t['layer_profile']}: {', '.join(result.instrumentation)}")
    if result.similar_artists:
        print(f"{t['proximity_network']}: {', '.join(result.similar_artists)}")

    print(f"\n{t['historical_origin']}:")
    print(f"  {result.cultural_context}")


if __name__ == "__main__":
    main()
