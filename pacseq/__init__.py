from .pac.pac import PAC
from .aligner.bowtie import Bowtie
from .reanno.map_reanno import MapReanno, ReferenceSet
from .reanno.reanno import MakeReanno, Reanno
from .reanno.anno import SimplifyReanno
from .mapper.mapper import PacMapper
from .gtf.gtf import PacGtf
from .utils import utils
from .utils import argsParser
