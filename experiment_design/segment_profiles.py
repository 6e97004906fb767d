from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pandas as pd

from statistical_analysis.errors import InvalidInputError


PERSUASION_PRINCIPLES = (
    'social_proof', 'scarcity', 'authority', 'reciprocity', 'commitment', 'liking'
)

SEGMENT_METRICS = ('conversion_rate', 'avg_order_value', 'mobile_rate')


@dataclass(frozen=True)
class GenerationSegment:
    segment_id: str
    name: str
    age_range: str
    conversion_rate: float      # percent
    avg_order_value: float
    mobile_rate: float          # percent of sessions
    sensitivities: Dict[str, int]
    device_share: Dict[str, int]
    behaviors: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)


# Illustrative demo figures in typical e-commerce ranges; sensitivities are
# assumptions to be validated by testing, not measurements.
GENERATION_SEGMENTS = (
    GenerationSegment(
        segment_id='gen-z',
        name='Gen Z',
        age_range='1997-2012',
        conversion_rate=2.8,
        avg_order_value=45,
        mobile_rate=85,
        sensitivities={'social_proof': 9, 'scarcity': 7, 'authority': 5,
                       'reciprocity': 6, 'commitment': 5, 'liking': 8},
        device_share={'mobile': 85, 'desktop': 10, 'tablet': 5},
        behaviors=[
            'Mobile-first experience',
            'Responds strongly to influencer recommendations',
            'Prefers one-click checkout',
            'Engages with video and interactive content',
            'Sensitive to fear of missing out',
        ],
        recommendations=[
            'Integrate social sharing',
            'Optimize mobile load speed',
            'Show real-time stock and purchase notifications',
            'Add AR try-on elements',
            'Use short-form social visual style',
        ]
    ),
    GenerationSegment(
        segment_id='millennial',
        name='Millennial',
        age_range='1981-1996',
        conversion_rate=3.5,
        avg_order_value=65,
        mobile_rate=70,
        sensitivities={'social_proof': 8, 'scarcity': 8, 'authority': 7,
                       'reciprocity': 7, 'commitment': 7, 'liking': 7},
        device_share={'mobile': 70, 'desktop': 25, 'tablet': 5},
        behaviors=[
            'Reads reviews and ratings closely',
            'Balances value and quality',
            'Still responds to email marketing',
            'Connects with brand story and values',
            'Comparison shops',
        ],
        recommendations=[
            'Detailed reviews and rating system',
            'Comparison tables and spec sheets',
            'Highlight mission and sustainability',
            'Loyalty programs and membership perks',
            'Personalized recommendations',
        ]
    ),
    GenerationSegment(
        segment_id='gen-x',
        name='Gen X',
        age_range='1965-1980',
        conversion_rate=4.2,
        avg_order_value=85,
        mobile_rate=55,
        sensitivities={'social_proof': 6, 'scarcity': 6, 'authority': 8,
                       'reciprocity': 8, 'commitment': 8, 'liking': 6},
        device_share={'mobile': 55, 'desktop': 40, 'tablet': 5},
        behaviors=[
            'Trusts expert opinion',
            'Values practicality and function',
            'Uses desktop and mobile alike',
            'Sensitive to security and privacy',
            'Loyal with high repurchase rate',
        ],
        recommendations=[
            'Feature expert endorsements and certifications',
            'Show security badges at checkout',
            'State return and refund policy clearly',
            'Offer phone and chat support',
            'Lead with practical benefits and discounts',
        ]
    ),
    GenerationSegment(
        segment_id='boomer',
        name='Baby Boomer',
        age_range='1946-1964',
        conversion_rate=3.8,
        avg_order_value=95,
        mobile_rate=40,
        sensitivities={'social_proof': 5, 'scarcity': 4, 'authority': 9,
                       'reciprocity': 7, 'commitment': 9, 'liking': 5},
        device_share={'mobile': 40, 'desktop': 55, 'tablet': 5},
        behaviors=[
            'Brand trust and reputation first',
            'Needs thorough information',
            'Comfortable ordering by phone',
            'Highly security conscious',
            'Long-term customer once trust is earned',
        ],
        recommendations=[
            'Large type and clear layout',
            'Step-by-step guidance',
            'Visible phone contact option',
            'Strong trust signals such as awards and history',
            'Free shipping and easy returns',
        ]
    ),
)


class SegmentProfiles:
    """Reference data for generational segments"""

    def __init__(self, segments=GENERATION_SEGMENTS):
        self.segments = {segment.segment_id: segment for segment in segments}

    def get(self, segment_id: str) -> GenerationSegment:
        if segment_id not in self.segments:
            raise InvalidInputError(f"Unknown segment: {segment_id}", field="segment_id")
        return self.segments[segment_id]

    def to_frame(self) -> pd.DataFrame:
        rows = []
        for segment in self.segments.values():
            row = {
                'segment_id': segment.segment_id,
                'name': segment.name,
                'age_range': segment.age_range,
                'conversion_rate': segment.conversion_rate,
                'avg_order_value': segment.avg_order_value,
                'mobile_rate': segment.mobile_rate,
            }
            row.update({f"{p}_sensitivity": segment.sensitivities[p] for p in PERSUASION_PRINCIPLES})
            rows.append(row)
        return pd.DataFrame(rows).set_index('segment_id')

    def sensitivity_comparison(self, segment_id: Optional[str] = None) -> pd.DataFrame:
        """Long-form principle/score table, for one segment or all of them"""
        segments = [self.get(segment_id)] if segment_id else list(self.segments.values())
        return pd.DataFrame([
            {'segment_id': s.segment_id, 'principle': p, 'value': s.sensitivities[p]}
            for s in segments
            for p in PERSUASION_PRINCIPLES
        ])

    def device_preference(self) -> pd.DataFrame:
        """Device share per segment; rows are devices, columns segments"""
        return pd.DataFrame({s.segment_id: s.device_share for s in self.segments.values()})

    def best_segment(self, metric: str) -> GenerationSegment:
        if metric in SEGMENT_METRICS:
            key = lambda s: getattr(s, metric)
        elif metric in PERSUASION_PRINCIPLES:
            key = lambda s: s.sensitivities[metric]
        else:
            raise InvalidInputError(f"Unknown segment metric: {metric}", field="metric")
        return max(self.segments.values(), key=key)
