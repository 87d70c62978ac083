from typing import List, Optional, Literal, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator

Severity = Literal["low", "medium", "high", "critical"]
Category = Literal["correctness", "performance", "maintainability", "best-practice"]
RuleType = Literal["principle", "requirement"]
Impact = Literal["LOW", "MEDIUM", "HIGH", "CRITICAL"]

SEVERITY_ORDER: Tuple[Severity, ...] = ("critical", "high", "medium", "low")


class Rule(BaseModel):
    # principle = guidance for the model's reasoning, requirement = strict enforcement
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    type: RuleType = "principle"
    impact: Impact = "MEDIUM"
    category: str = "general"
    tags: Tuple[str, ...] = ()
    content: str = ""
    source: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _lower_type(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("impact", mode="before")
    @classmethod
    def _upper_impact(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, v):
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return tuple(str(t) for t in v)


class FileToReview(BaseModel):
    path: str
    content: str
    language: str
    lines_changed: Optional[List[int]] = None


class ReviewIssue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    severity: Severity
    category: Category
    file: str
    line: Optional[int] = None
    title: str
    description: str
    reasoning: str
    suggestion: Optional[str] = None
    rule_id: Optional[str] = Field(default=None, alias="ruleId")

    @property
    def is_rule_based(self) -> bool:
        return bool(self.rule_id)

    @property
    def location(self) -> str:
        return f"{self.file}:{self.line}" if self.line else self.file


class ReviewResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    issues: List[ReviewIssue] = Field(default_factory=list)
    summary: str
    overall_score: float = Field(..., ge=0, le=100, alias="overallScore")
    thinking_trace: Optional[str] = Field(default=None, alias="thinkingTrace")
    files_reviewed: List[str] = Field(default_factory=list, alias="filesReviewed")
    total_lines: int = Field(default=0, alias="totalLines")
    model: Optional[str] = None
    elapsed_seconds: Optional[float] = None


class ReviewConfig(BaseModel):
    model: str
    enable_deep_thinking: bool = True
    max_tokens: int = 8192
    temperature: float = 0.1
    api_key: Optional[str] = None
    base_url: str = "https://generativelanguage.googleapis.com"
    timeout: float = 300
