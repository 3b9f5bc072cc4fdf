"""Tradeline Engine - Data Models"""
from .ssot import (
    # Enums
    Bureau, Ownership, ConflictField, ConflictResolution, TieStrategy, FieldKind,
    # SSOT #1: Parsing Output
    ScoredValue, ParsedAccount, ParsedInquiry, ParseResult, SCORED_ACCOUNT_FIELDS,
    # SSOT #2: Quality Gate Output
    QualityThresholds, BureauMetrics, BureauEvaluation,
    # SSOT #3: Merge Output
    BureauAccount, FieldSnapshot, SourceAccountSnapshot, ReviewAccount,
    ConflictEntry, MergeResult,
)
from .ev_models import (
    AnalysisInputError,
    ScoreBand, UtilizationBracket, ProductType, AccountStatus, PaymentStatus,
    LimitSource, AprSource, ActionType, ScoreImpact, WarningLevel, PaydownStrategy,
    AnalyzeUser, AnalyzeAccount, AnalyzeFlags, AnalyzeMeta, AnalyzeInput, ManualEdit,
    ScenarioRange, ActionMetadata, Action, PlanWarning, EvPlan, AnalysisAudit, AnalyzeOutput,
    PaydownAccount, PaydownPlan, PaydownResult,
)

__all__ = [
    "Bureau", "Ownership", "ConflictField", "ConflictResolution", "TieStrategy", "FieldKind",
    "ScoredValue", "ParsedAccount", "ParsedInquiry", "ParseResult", "SCORED_ACCOUNT_FIELDS",
    "QualityThresholds", "BureauMetrics", "BureauEvaluation",
    "BureauAccount", "FieldSnapshot", "SourceAccountSnapshot", "ReviewAccount",
    "ConflictEntry", "MergeResult",
    "AnalysisInputError",
    "ScoreBand", "UtilizationBracket", "ProductType", "AccountStatus", "PaymentStatus",
    "LimitSource", "AprSource", "ActionType", "ScoreImpact", "WarningLevel", "PaydownStrategy",
    "AnalyzeUser", "AnalyzeAccount", "AnalyzeFlags", "AnalyzeMeta", "AnalyzeInput", "ManualEdit",
    "ScenarioRange", "ActionMetadata", "Action", "PlanWarning", "EvPlan", "AnalysisAudit",
    "AnalyzeOutput", "PaydownAccount", "PaydownPlan", "PaydownResult",
]
