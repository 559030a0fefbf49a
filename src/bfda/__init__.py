from bfda.analysis import AnalysisConfig, AnalysisResult, analyze, render_analysis_text, run_analysis

__all__ = ["AnalysisConfig", "AnalysisResult", "analyze", "render_analysis_text", "run_analysis"]
